"""Pydantic schemas for CenturyLink Cloud v2 API payloads.

These schemas document the structure of the CLC requests and responses used
by the package provisioner. Field names follow the API's camelCase on the
wire and snake_case in Python.

API Documentation: https://www.ctl.io/api-docs/v2/
"""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Body of POST /authentication/login."""

    username: str
    password: str


class LoginResponse(BaseModel):
    """Response of POST /authentication/login."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    username: str | None = Field(None, alias="userName")
    account_alias: str = Field(..., alias="accountAlias", description="Account alias")
    location_alias: str | None = Field(None, alias="locationAlias")
    roles: list[str] = Field(default_factory=list)
    bearer_token: str = Field(..., alias="bearerToken", repr=False)


class PackageSpec(BaseModel):
    """Package to execute on one or more servers."""

    model_config = ConfigDict(populate_by_name=True)

    package_id: str = Field(..., alias="packageId", description="Blueprint package ID")
    parameters: dict[str, str] = Field(default_factory=dict)


class ExecutePackageRequest(BaseModel):
    """Body of POST /operations/{alias}/servers/executePackage."""

    servers: list[str]
    package: PackageSpec


class Link(BaseModel):
    """Hypermedia link attached to API responses."""

    model_config = ConfigDict(extra="allow")

    rel: str
    href: str | None = None
    id: str | None = None


class ServerOperation(BaseModel):
    """Per-server entry returned by server operations such as executePackage."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    server: str | None = Field(None, description="Server name the entry refers to")
    is_queued: bool = Field(False, alias="isQueued")
    error_message: str | None = Field(None, alias="errorMessage")
    links: list[Link] = Field(default_factory=list)

    def get_status_id(self) -> str | None:
        """Return the ID of the status link, or None when there is none."""
        for link in self.links:
            if link.rel == "status" and link.id:
                return link.id
        return None


class StatusResponse(BaseModel):
    """Response of GET /operations/{alias}/status/{id}.

    Known values: notStarted, executing, succeeded, failed, resumed, unknown.
    """

    model_config = ConfigDict(extra="allow")

    status: str

    @property
    def is_complete(self) -> bool:
        return self.status == "succeeded"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"

    @property
    def is_running(self) -> bool:
        return not (self.is_complete or self.is_failed)
