# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""In-memory test doubles for transports and HTTP clients."""

from .mockhttp import MockHTTPClient, MockHTTPClientError
from .mocktransport import MockTransport

__all__ = (
    "MockHTTPClient",
    "MockHTTPClientError",
    "MockTransport",
)
