"""
Preview schemas - response formats for the preview server endpoints.
"""

from typing import Dict

from pydantic import BaseModel


class ServeResponse(BaseModel):
    success: bool = True
    serving: bool = True
    port: int
    url: str


class StopResponse(BaseModel):
    success: bool = True
    serving: bool = False


class ServerInfo(BaseModel):
    port: int
    url: str


class ServersResponse(BaseModel):
    success: bool = True
    servers: Dict[str, ServerInfo]
