"""CLI package for decoding and relaying OMRON sensor advertisements."""
