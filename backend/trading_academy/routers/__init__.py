"""HTTP routers. Each one reads and writes through a caller-bound `Store`."""
