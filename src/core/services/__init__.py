# blog-analytics - Services (pure domain logic)
# Referrer attribution and crawler classification; no I/O
