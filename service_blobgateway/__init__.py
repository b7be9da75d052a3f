"""
Blob Gateway service package.

Streams blobs between authenticated clients and a pluggable data
controller. Module import performs no IO; directories are created only
when a service is constructed.
"""
