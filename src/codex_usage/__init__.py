# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""Terminal report of Codex / ChatGPT rate-limit usage."""

__version__ = "0.1.0"
