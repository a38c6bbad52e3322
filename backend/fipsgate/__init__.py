"""fipsgate - TPM profile admissibility under host FIPS mode.

Decides whether the algorithms a TPM 2 library has enabled can run while the
host's OpenSSL enforces FIPS mode:
- Disallowed-algorithm and minimum key-size checks
- Profile-attribute policy table
- Host OpenSSL FIPS mode query and disable
"""

__version__ = "0.1.0"
__author__ = "fipsgate Contributors"
