"""Geometry helpers: homography, quaternions, vectors."""
