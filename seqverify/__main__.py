from seqverify.cli import main

main()
