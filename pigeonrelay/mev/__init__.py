"""Private transaction relaying through bloXroute and construction of its client."""