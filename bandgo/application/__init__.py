"""Application layer - ports and the managers that use them."""
