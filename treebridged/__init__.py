"""treebridge daemon: HTTP and command-line surfaces over treebridge_library."""
