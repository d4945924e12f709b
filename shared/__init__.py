"""
Shared Kernel

Base classes, value objects, the message bus and the hosted-store client
shared by every bounded context.
"""
