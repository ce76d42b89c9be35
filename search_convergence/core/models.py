"""
Data model for search services, poll results and search responses
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from .errors import ConfigurationError


@dataclass(frozen=True)
class SearchServiceProperties:
    """A logical search service and the number of replicas behind it"""
    uri: str
    instance_count: int

    def __post_init__(self):
        if self.instance_count < 1:
            raise ConfigurationError(
                f"Search service {self.uri} must have at least one instance, got {self.instance_count}"
            )

    def to_dict(self) -> dict:
        return {
            'uri': self.uri,
            'instance_count': self.instance_count
        }


@dataclass(frozen=True)
class CloudServiceProperties:
    """Service properties reported by the management API"""
    uri: str
    instance_count: int


@dataclass(frozen=True)
class PollOutcome:
    """Result of polling one replica"""
    url: str
    succeeded: bool
    elapsed: float

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'succeeded': self.succeeded,
            'elapsed': self.elapsed
        }


@dataclass(frozen=True)
class PollMessages:
    """
    Messages written while waiting for a change to reach every replica.

    ``success`` and ``failure`` are format strings with ``{url}`` and
    ``{elapsed}`` fields.
    """
    starting: str
    success: str
    failure: str


class SearchModel(BaseModel):
    """Base for search payloads, which use camelCase JSON properties"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')


class V2Dependency(SearchModel):
    id: Optional[str] = None
    version_spec: Optional[str] = None
    target_framework: Optional[str] = None


class V2SearchPackageRegistration(SearchModel):
    id: Optional[str] = None
    download_count: int = 0
    owners: List[str] = Field(default_factory=list)


class V2SearchPackage(SearchModel):
    package_registration: Optional[V2SearchPackageRegistration] = None
    version: Optional[str] = None
    normalized_version: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    authors: Optional[str] = None
    copyright: Optional[str] = None
    tags: Optional[str] = None
    release_notes: Optional[str] = None
    is_latest_stable: bool = False
    is_latest: bool = False
    listed: bool = False
    created: Optional[datetime] = None
    published: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    last_edited: Optional[datetime] = None
    download_count: int = 0
    flattened_dependencies: Optional[str] = None
    dependencies: List[V2Dependency] = Field(default_factory=list)
    supported_frameworks: List[str] = Field(default_factory=list)
    hash: Optional[str] = None
    hash_algorithm: Optional[str] = None
    package_file_size: int = 0
    requires_license_acceptance: bool = False

    def matches(self, package_id: str, version: str) -> bool:
        """Check whether this hit is the given package version"""
        registration = self.package_registration
        return registration is not None and registration.id == package_id and self.version == version


class V2SearchResponse(SearchModel):
    data: List[V2SearchPackage] = Field(default_factory=list)
    index: Optional[str] = None
    total_hits: int = 0


class V3VersionEntry(SearchModel):
    version: Optional[str] = None
    downloads: int = 0


class V3SearchPackage(SearchModel):
    registration: Optional[str] = None
    id: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    title: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    authors: List[str] = Field(default_factory=list)
    total_downloads: int = 0
    versions: List[V3VersionEntry] = Field(default_factory=list)


class V3SearchResponse(SearchModel):
    data: List[V3SearchPackage] = Field(default_factory=list)
    index: Optional[str] = None
    total_hits: int = 0
    last_reopen: Optional[datetime] = None


class AutocompleteResponse(SearchModel):
    data: List[str] = Field(default_factory=list)
    index: Optional[str] = None
    total_hits: int = 0
    last_reopen: Optional[datetime] = None


class ServiceIndexResource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: str = Field(alias="@id")
    type: str = Field(alias="@type")


class ServiceIndex(BaseModel):
    """The service index document that lists the search services"""
    model_config = ConfigDict(extra='ignore')

    version: Optional[str] = None
    resources: List[ServiceIndexResource] = Field(default_factory=list)


CompletionPredicate = Callable[[V2SearchResponse], bool]
