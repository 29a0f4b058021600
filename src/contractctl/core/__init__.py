"""Runtime primitives shared by the compiler and the auditor."""
