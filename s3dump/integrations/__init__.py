# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump Integrations - Framework integrations for s3dump.
"""

from s3dump.integrations.fastapi import (
    create_app,
    handle_dump_request,
    register_dump_routes,
)

__all__ = [
    "create_app",
    "handle_dump_request",
    "register_dump_routes",
]
