"""School Attendance package.

Scan-to-attendance pipeline (QR badge or face match) and the biometric
enrollment lifecycle, organized by feature modules with a thin Flask
controller layer on top of service/repository layers.
"""
