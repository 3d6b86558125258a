#!/usr/bin/env python3
"""Standalone chat app — run duet-chat with the NiceGUI page and the socket relay.

    cd samples/chat
    CHAT_STORE=memory poetry run python app.py

Requires GEMINI_API_KEY (or OPENAI_API_KEY with LLM_PROVIDER=openai).
Starts on http://localhost:5000, set HTTPS=1 for a self-signed certificate.

Environment variables:
    MONGO_URI       — MongoDB connection string (or CHAT_STORE=memory)
    PORT            — Server port (default: 5000)
    HTTPS           — Set to 1 for HTTPS (default: 0)
    SSL_CERTFILE    — Custom TLS certificate path
    SSL_KEYFILE     — Custom TLS key path
"""
from duet_chat.standalone import main

if __name__ == "__main__":
    main()
