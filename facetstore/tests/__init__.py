"""
Test suite for facetstore.

Focus areas:
- Key scheme and record classification
- Processor purity and replay determinism
- Commit validation and optimistic concurrency
- Facet scenarios (ledger, duplicate webhooks) on memory and DynamoDB backends
- Change relay filtering and publishing
"""
