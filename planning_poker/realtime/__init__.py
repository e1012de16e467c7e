"""
Real-time session coordination.

Session and connection registries, admin election, the voting state
machine, the disconnect reaper, and the Socket.IO event router.
"""
