"""FlipLive backend: live session registry, ghost reaper and economy ledger."""
