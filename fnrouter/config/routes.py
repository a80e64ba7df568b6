FILES_GROUP = "files"
API_GROUP = "api"
PROPS_GROUP = "props"

# group name -> glob below the functions directory
ROUTE_GROUPS = {
    FILES_GROUP: {
        "glob": "*",
        # flat files are looked up verbatim, brackets included
        "compile_patterns": False,
    },
    API_GROUP: {
        "glob": "api/**/*",
        "compile_patterns": True,
    },
    PROPS_GROUP: {
        "glob": "props/**/*",
        "compile_patterns": True,
    },
}
