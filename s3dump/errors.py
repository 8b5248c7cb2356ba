# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for s3dump.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""


def explain_missing_env(name: str) -> str:
    """
    Explain that a required environment variable is missing.
    """

    return (
        f"{name} is not configured. "
        f"Set the {name} environment variable or pass it to DumpConfig() directly."
    )


def explain_invalid_compression_env(value: str | None) -> str:
    """
    Explain that DUMP_COMPRESSION is invalid.
    """

    return (
        f"Invalid DUMP_COMPRESSION value: {value!r}. "
        "Expected 'gzip' or 'zstd'."
    )


def explain_invalid_part_size_env(value: str | None) -> str:
    """
    Explain that DUMP_PART_SIZE_MB is invalid.
    """

    return (
        f"Invalid DUMP_PART_SIZE_MB value: {value!r}. "
        "It must be an integer number of mebibytes, 5 or more."
    )


def explain_missing_secret_key(name: str, secret_id: str) -> str:
    """
    Explain that the credential bundle lacks a required key.
    """

    return (
        f"Secret {secret_id!r} has no {name!r} entry. "
        "Add it to the secret or point access_key_name/secret_key_name at the right keys."
    )


def explain_invalid_secret_payload(secret_id: str) -> str:
    """
    Explain that the secret payload is not a JSON object of strings.
    """

    return (
        f"Secret {secret_id!r} must hold a JSON object mapping key names to string values."
    )
