"""
Scoreboard Service - Team registration and live leaderboard

Responsibilities:
- Team registration (unique name, email and uid)
- Score updates from the game client
- Sorted scoreboard with live change delivery
- Email verification codes (optional)
"""
