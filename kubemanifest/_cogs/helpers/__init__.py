"""
General-purpose helpers not related to the reconciliation itself
(neither to the engines nor to the structs),
which are used to prepare and control the runtime environment.

As a rule of thumb, helpers MUST be abstracted from the reconciler
to such an extent that they could be extracted as reusable libraries.
If they implement concepts of the reconciler, they are not "helpers"
(consider making them structs, engines, or the reactor parts).
"""
