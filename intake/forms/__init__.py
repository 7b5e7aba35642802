"""Field schemas, flow step tables, drafts and the wizard engine."""
