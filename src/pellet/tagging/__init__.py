"""Tag submission: validation, economy ledger and the submission pipeline."""
