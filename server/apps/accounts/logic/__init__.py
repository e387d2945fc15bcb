"""Business logic layer for accounts app.

Sign-up and sign-in with emailed one-time passcodes, session handling
and resolution of the current user for the files app.
"""
