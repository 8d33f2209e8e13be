"""Provisioning module for the offline FairPlay workflow.

This module creates or reuses Media Services resources:
- Encoding transform (get-or-create)
- Output asset and job submission
- FairPlay content key policy and CBCS streaming policy (get-or-create)
"""

from .resources import (
    get_or_create,
    get_or_create_transform,
    create_output_asset,
    get_or_overwrite_output_asset,
    submit_job,
)
from .content_protection import (
    build_fairplay_configuration,
    get_or_create_content_key_policy,
    load_fairplay_certificate,
    get_or_create_streaming_policy,
)

__all__ = [
    "get_or_create",
    "get_or_create_transform",
    "create_output_asset",
    "get_or_overwrite_output_asset",
    "submit_job",
    "build_fairplay_configuration",
    "get_or_create_content_key_policy",
    "load_fairplay_certificate",
    "get_or_create_streaming_policy",
]
