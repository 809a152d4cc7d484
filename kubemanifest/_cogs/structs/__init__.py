"""
All the structures of the reconciled objects and their identities.

Used to describe the desired and the live state of the objects, to build
their tracking keys, to look up the native kinds' patching metadata,
and to carry the computed patches to the API.

All the functions are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
