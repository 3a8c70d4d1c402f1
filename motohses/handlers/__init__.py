"""Command handlers and the command registry used by the mock HSES server."""