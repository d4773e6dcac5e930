"""Business logic domains.

- library: songs, the library store client and the local cache
- playback: engine integration and the queue/history controller
- youtube: audio extraction
- ai: vibe suggestions
- auth: passwords and sessions
"""
