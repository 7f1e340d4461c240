"""
Business logic shared by the routers and the background scheduler.
"""
