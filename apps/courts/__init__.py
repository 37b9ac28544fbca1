"""Courts app package.

Holds the court registry the booking core reads: existence, activation,
per-hour price and the wall-clock time zone slots are expressed in. Courts
are owned by clubs, which are managed outside this project and referenced
only by id.
"""
