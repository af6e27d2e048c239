SERVICE_NAME = "nwfetch"
