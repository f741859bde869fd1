"""Real-time infrastructure — Redis pub/sub + WebSocket.

Learn: Events flow through two channels:
1. Services → Redis PUBLISH (after a successful commit)
2. Redis SUBSCRIBE → WebSocket → every connected client

Producers never wait on consumers; a lost event only means a stale UI
until the next fetch.
"""
