"""vacctl - concurrent disk scanner and safety-checked cleaner.

Scans well-known cleanup locations (caches, logs, temp files) or any
directory, aggregates subtree sizes in parallel, and deletes selections
only inside an explicitly allowed scope.
"""

__version__ = "0.3.0"
