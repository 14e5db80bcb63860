"""
Arena402 arbiter package.

Components:
- games: per-game state machines (rock-paper-scissors, coin flip, tic-tac-toe, chess) and the registry
- arbiter: match lifecycle, move routing, next-move dispatch, settlement and eviction
- decision/random_provider/llm_provider: who picks each player's move
- entry_gate/settlement: payment check at registration and prize payout
- notifications/stats: event bus with SSE framing and lifetime statistics
"""
# Package exports are minimal; import modules directly as needed.
