"""Ceph RGW Operator."""
