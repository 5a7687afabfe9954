"""ThunderBBS CLI Module - Configuration and user administration commands."""
