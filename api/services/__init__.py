# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""Services layer for the data API.

Collaborators that are not part of the document adapter itself:
- logging configuration
- application registry proxy
"""

from .logging_config import configure_logging
from .registry_proxy import RegistryProxy, UpstreamResponse

__all__ = ['configure_logging', 'RegistryProxy', 'UpstreamResponse']
