# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Delivery through Amazon Simple Email Service."""

from .config import SESConfig
from .transport import SESTransport

__all__ = ("SESConfig", "SESTransport")
