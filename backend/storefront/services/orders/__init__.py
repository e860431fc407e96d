"""Order lifecycle: status model, transitions, persistence and hand-off formatting."""
