"""Event-to-state reducer for ERC-721 Transfer, Approval and ApprovalForAll events."""
