"""Authentication and authorization core.

Learn: Leaves first:
1. jwt.py          signed, time-bounded access/refresh tokens (the codec)
2. password.py     bcrypt hashing
3. store.py        persisted refresh credentials (revocation + expiry)
4. sessions.py     sign-up / sign-in / refresh / logout / identify
5. membership.py   "is this principal an Active member of this org, and as what?"
6. ownership.py    "which org owns this course / assignment / submission?"
7. gate.py         composes all of the above into one allow/deny decision
8. dependencies.py FastAPI glue around the gate
"""
