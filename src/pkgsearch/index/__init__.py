"""Document building, snapshots, refresh and ranked search."""
