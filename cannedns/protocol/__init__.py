"""DNS side of cannedns: codec bridge, matching, reply building and the server."""
