"""
Protocol core: canonicalization, signing, certificate SNs, AES and response checks.

Every function here is stateless; :class:`SigningConfig` is frozen and can be
shared across threads.
"""
