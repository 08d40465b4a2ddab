"""
buildcache.producers - Artifact Producers
===========================================

    - BaseProducer:          template for output + dependencies + _build()
    - ConcatenationProducer: joins text inputs into one artifact
"""

from buildcache.producers.base import BaseProducer
from buildcache.producers.concatenation import ConcatenationProducer

__all__ = ["BaseProducer", "ConcatenationProducer"]
