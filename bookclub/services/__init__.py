"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable across different parts of the application
- Easier to test in isolation

Current services:
- membership.py: join/leave/ownership transfer and member administration
- membership_store.py: membership persistence primitives (no commits)
- errors.py: typed membership errors with stable codes
- events.py: club events, RSVPs and the next-meeting summary
- ratings.py: club rating aggregation
- cache.py: Redis caching of public user profiles
- rate_limiter.py: Rate limiting with slowapi
- security.py: Password hashing and JWT utilities
"""
