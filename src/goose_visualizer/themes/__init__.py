"""Scene themes and the synchronizer that composes them."""
