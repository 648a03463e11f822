"""ERC-721 ownership ledger: folds Transfer/Approval events into queryable entities."""
