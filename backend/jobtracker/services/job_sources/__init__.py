from typing import Dict, Type

from jobtracker.services.job_sources.base import BaseJobSource
from jobtracker.services.job_sources.adzuna import AdzunaSource
from jobtracker.services.job_sources.serpapi import SerpApiSource
from jobtracker.services.job_sources.remoteok import RemoteOKSource

JOB_SOURCES: Dict[str, Type[BaseJobSource]] = {
    SerpApiSource.source: SerpApiSource,
    AdzunaSource.source: AdzunaSource,
    RemoteOKSource.source: RemoteOKSource,
}


def get_job_source(name: str) -> BaseJobSource:
    return JOB_SOURCES[name]()


__all__ = [
    "BaseJobSource",
    "AdzunaSource",
    "SerpApiSource",
    "RemoteOKSource",
    "JOB_SOURCES",
    "get_job_source",
]
