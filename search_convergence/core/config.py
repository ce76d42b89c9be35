"""
Configuration management for search convergence checks
"""
import json
import os
from typing import Dict, Literal, Optional, Union
from pydantic import BaseModel, Field


class CloudServiceDetails(BaseModel):
    """Location of a search cloud service in the management API"""
    subscription: str
    resource_group: str
    name: str
    slot: str = "production"


class DiscoveryTopology(BaseModel):
    """Use the search services listed in the service index with a fixed instance count"""
    mode: Literal["discovery"] = "discovery"
    override_instance_count: int = Field(default=1, ge=0)


class MappedTopology(BaseModel):
    """Use the service index and look each host up in the management API"""
    mode: Literal["mapped"] = "mapped"
    index_json_mapped_search_services: Dict[str, CloudServiceDetails]


class SingleServiceTopology(BaseModel):
    """Always poll one search service resolved through the management API"""
    mode: Literal["single"] = "single"
    single_search_service: CloudServiceDetails


TopologyConfig = Union[DiscoveryTopology, MappedTopology, SingleServiceTopology]


class ManagementApiConfig(BaseModel):
    """Access to the cloud management API"""
    base_url: str = "https://management.azure.com"
    api_version: str = "2016-04-01"
    bearer_token: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0)


class PollingConfig(BaseModel):
    """Timing of the per-replica poll loop"""
    search_wait_seconds: float = Field(default=600.0, gt=0)
    sleep_seconds: float = Field(default=5.0, gt=0)
    request_timeout_seconds: float = Field(default=60.0, gt=0)


class RetryConfig(BaseModel):
    """Outer retry of a whole convergence attempt"""
    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=5.0, ge=0)


class Config(BaseModel):
    """Main configuration class"""
    index_url: str = "https://api.nuget.org/v3/index.json"
    topology: TopologyConfig = Field(default_factory=DiscoveryTopology, discriminator="mode")
    management_api: Optional[ManagementApiConfig] = None
    polling: PollingConfig = Field(default_factory=PollingConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables"""
        mode = os.getenv("SEARCH_TOPOLOGY_MODE", "discovery")
        if mode == "single":
            topology = SingleServiceTopology(
                single_search_service=CloudServiceDetails(
                    subscription=os.getenv("SEARCH_SERVICE_SUBSCRIPTION", ""),
                    resource_group=os.getenv("SEARCH_SERVICE_RESOURCE_GROUP", ""),
                    name=os.getenv("SEARCH_SERVICE_NAME", ""),
                    slot=os.getenv("SEARCH_SERVICE_SLOT", "production")
                )
            )
        elif mode == "discovery":
            topology = DiscoveryTopology(
                override_instance_count=int(os.getenv("SEARCH_OVERRIDE_INSTANCE_COUNT", "1"))
            )
        else:
            raise ValueError(f"Unsupported SEARCH_TOPOLOGY_MODE from environment: {mode}")

        token = os.getenv("MANAGEMENT_API_TOKEN")
        return cls(
            index_url=os.getenv("SEARCH_INDEX_URL", "https://api.nuget.org/v3/index.json"),
            topology=topology,
            management_api=ManagementApiConfig(
                base_url=os.getenv("MANAGEMENT_API_URL", "https://management.azure.com"),
                bearer_token=token
            ) if token else None,
            polling=PollingConfig(
                search_wait_seconds=float(os.getenv("SEARCH_WAIT_SECONDS", "600")),
                sleep_seconds=float(os.getenv("SEARCH_SLEEP_SECONDS", "5"))
            ),
            retry=RetryConfig(
                max_attempts=int(os.getenv("SEARCH_RETRY_ATTEMPTS", "3")),
                backoff_seconds=float(os.getenv("SEARCH_RETRY_BACKOFF_SECONDS", "5"))
            )
        )

    @classmethod
    def load_from_file(cls, file_path: str) -> "Config":
        """Load configuration from JSON file"""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls(**data)

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file"""
        with open(file_path, 'w') as f:
            json.dump(self.model_dump(), f, indent=2)
