from .clc import (
    ExecutePackageRequest,
    Link,
    LoginRequest,
    LoginResponse,
    PackageSpec,
    ServerOperation,
    StatusResponse,
)

__all__ = [
    "ExecutePackageRequest",
    "Link",
    "LoginRequest",
    "LoginResponse",
    "PackageSpec",
    "ServerOperation",
    "StatusResponse",
]
