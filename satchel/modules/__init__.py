"""
Satchel Modules

session, storage, middleware, api and config are independent black boxes.
Each exposes its interface from its package __init__ and hides the rest;
the session module only sees storage through the SessionStorage protocol.
"""
