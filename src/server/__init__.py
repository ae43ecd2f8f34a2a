"""HTTP and WebSocket front end for the cabin dispatch simulation."""
