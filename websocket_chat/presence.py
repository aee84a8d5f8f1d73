class PresenceRegistry:
    """
    Tracks which websocket session last joined each conversation.

    Only join and disconnect touch it, both on the hub's event loop, so no
    locking is needed. It is consulted for cleanup only; room membership
    itself lives on the channel layer.
    """

    def __init__(self):
        self._sessions = {}  # tracking_id -> session_id

    def record(self, tracking_id, session_id):
        self._sessions[tracking_id] = session_id

    def session_for(self, tracking_id):
        return self._sessions.get(tracking_id)

    def discard_session(self, session_id):
        """Forget every conversation pointing at ``session_id``; returns the tracking ids removed."""
        removed = [tid for tid, sid in self._sessions.items() if sid == session_id]
        for tracking_id in removed:
            del self._sessions[tracking_id]
        return removed

    def sessions(self):
        return set(self._sessions.values())

    def clear(self):
        self._sessions.clear()

    def __contains__(self, tracking_id):
        return tracking_id in self._sessions

    def __len__(self):
        return len(self._sessions)
