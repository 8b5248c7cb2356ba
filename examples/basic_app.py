# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example s3dump service.

Run with:
    uvicorn examples.basic_app:app

Environment variables:
    SECRET_ID: Secret holding AWS_ACCESS_KEY and AWS_SECRET_KEY
    REGION: Region of the secret store and the bucket
    BUCKET: Bucket receiving the archives
    S3_ENDPOINT: S3-compatible endpoint (optional)
    DUMP_ROOT: Directory to archive (default: /)

The runtime's own identity (instance role, AWS_* variables, ...) is used to
read the secret; the secret's keys are used to write the archive.
"""

from s3dump import create_config_from_env
from s3dump.integrations import create_app

# Validated once at startup, never re-read per request
config = create_config_from_env()

app = create_app(config)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
