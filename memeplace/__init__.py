"""
memeplace — Community Meme Board Backend
==========================================
Users post memes (a link plus metadata) into communities, vote on them
and favourite communities.  The interesting parts are the ranked,
paginated feeds and the uniqueness rules that hold under concurrent
writes.

Package layout::

    memeplace/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # Validation / Conflict / NotFound / Unavailable
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session helper, async bridge
    │   └── models.py      # ORM models + case-insensitive unique indexes
    ├── engine/
    │   ├── links.py       # Link validation + canonical form
    │   ├── pagination.py  # sort/count/offset normalization, Page
    │   └── ranking.py     # Hot score
    ├── services/
    │   ├── community_service.py  # Lookup, exists, create
    │   ├── meme_service.py       # Two-phase create, get, soft delete
    │   ├── vote_service.py       # Vote ledger
    │   ├── favourite_service.py  # Favourite registry
    │   └── feed_service.py       # new / top / hot listings
    └── api/
        ├── main.py        # FastAPI app
        ├── auth.py        # Bearer JWT gate
        └── routes/        # communities, memes, templates
"""

__version__ = "0.1.0"
