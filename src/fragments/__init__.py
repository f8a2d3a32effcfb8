"""Client core for the Fragments news feed: tags, backend access and feed state."""
