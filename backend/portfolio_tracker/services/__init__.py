# backend/portfolio_tracker/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Receive their collaborators through the constructor

Architecture:
    services/
    ├── __init__.py              # This file
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Business constants
    ├── circuit_breaker.py       # Circuit breaker for the market data provider
    ├── quote_service.py         # Cached quotes, FX, search (QuoteCache, QuoteService)
    ├── transaction_service.py   # Ledger mutations and reads
    ├── snapshot_service.py      # 15-minute snapshots and history
    ├── market_data/             # Provider interface, Yahoo, symbols, indices
    ├── valuation/               # Ledger aggregation, pricing, P&L
    └── benchmark/               # Benchmark ledger and backfill

Dependency graph (constructor injection, wired in dependencies.py):
    MarketDataProvider → QuoteService → ValuationService
                                      → BenchmarkService → TransactionService
                         ValuationService + BenchmarkService → SnapshotService
"""
