"""
Code shared by the hub server and its clients: wire protocol and world constants.
"""
