"""Payloaders and depacketizers for Opus, VP8 and VP9, a VP9 frame header parser, and H.265 depacketizers."""