# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for pluggable components.

Available protocols:
- DecoderProtocol: Interface for one-shot response decoders
"""

from .decoder import DecoderProtocol

__all__ = ["DecoderProtocol"]
