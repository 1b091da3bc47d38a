"""The relayer: processor building, message and gravity work loops, errors, health checks and keep-alive."""