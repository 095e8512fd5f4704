"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
ALMREST - ALM REST API client
Authenticates against an ALM server and reads and writes its test-management entities
"""

__version__ = "0.1.0"
