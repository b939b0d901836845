from __future__ import annotations

from collections.abc import Mapping

from fastapi import Request

PermissionTable = Mapping[str, tuple[str, ...]]


def get_permission_table(request: Request) -> PermissionTable:
    return request.app.state.permission_table


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    if request.client:
        return request.client.host
    return None
