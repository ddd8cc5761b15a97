"""
Operator-side board: resolves drop gestures into Party Store calls and keeps
a local view of the parties that is reloaded whenever it may be stale.
"""
