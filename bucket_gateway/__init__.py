"""IAP-protected gateway serving objects from a Cloud Storage bucket.

Each request must carry a valid ``X-Goog-IAP-JWT-Assertion``. Its path is
then resolved to an object in the configured bucket (``/docs/`` to
``docs/index.html``, ``/about`` to ``about`` or else ``about/index.html``)
and the object is streamed back as-is.
"""
