# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

from .main import main

if __name__ == "__main__":
    main()
