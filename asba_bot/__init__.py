"""asba-bot: automated MeroShare IPO (ASBA) checks and applications."""
