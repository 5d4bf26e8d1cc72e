"""
NCR - National Chess Rating engine

Rating computation and update engine for a national chess federation.
Players carry three independent rating tracks (classical, rapid, blitz)
that are updated once a tournament has concluded.

Main components:
- rating: Elo math, status rules, player updates, tournament reports,
  bulk rating uploads
- db: SQLAlchemy persistence for players, tournaments and rating jobs
- stores: Persistence interfaces the rating engine writes through
"""

__version__ = "1.0.0"
