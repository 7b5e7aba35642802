"""Client-side booking core: schemas, flows, wizard engine and submission."""
