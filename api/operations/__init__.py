# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""Operations layer for the data API.

This package handles API-facing operations:
- Document access (DataAccessAdapter)
- Index management (IndexManager)
- Query execution (QueryExecutor)

Principles:
- Single Responsibility Principle
- Dependency Injection
"""
